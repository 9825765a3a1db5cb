"""Domain layer: record models, references, and pure parsing.

No filesystem access lives here. Infrastructure reads and writes files and
hands the text to these functions; services turn the results into
``ServiceResult`` payloads.
"""
