"""The voter roll: models, query filters, import, listing, export and handlers."""