"""Candidates: models, service rules and request handlers."""