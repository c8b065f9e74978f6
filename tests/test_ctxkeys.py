from pemira.ctxkeys import ContextKey, get_user_id, get_user_role, get_voter_id


def test_user_id_present():
    assert get_user_id({ContextKey.USER_ID: 7}) == 7


def test_user_id_missing():
    assert get_user_id({}) is None


def test_user_id_wrong_type():
    assert get_user_id({ContextKey.USER_ID: "7"}) is None


def test_user_id_rejects_bool():
    assert get_user_id({ContextKey.USER_ID: True}) is None


def test_voter_id_prefers_voter_key():
    ctx = {ContextKey.VOTER_ID: 11, ContextKey.USER_ID: 7}
    assert get_voter_id(ctx) == 11


def test_voter_id_falls_back_to_user_id():
    assert get_voter_id({ContextKey.USER_ID: 7}) == 7


def test_voter_id_missing():
    assert get_voter_id({}) is None


def test_user_role():
    assert get_user_role({ContextKey.USER_ROLE: "ADMIN"}) == "ADMIN"


def test_user_role_wrong_type():
    assert get_user_role({ContextKey.USER_ROLE: 3}) is None