"""FastAPI dependencies shared by the routers.

``auth`` resolves who is calling, ``clock`` provides the reference instant
used for warranty status decisions.
"""
