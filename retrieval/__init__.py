"""Archive retrieval for the content factory.

Loads the magazine archive, scores articles against a concept's terms, chunks
the best matches into a budgeted, chronologically ordered context bundle, and
merges it with the external context channels.
"""
