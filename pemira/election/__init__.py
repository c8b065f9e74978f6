"""Elections: models, voter status, voting lifecycle and request handlers."""