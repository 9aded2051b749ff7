"""
Query collaborators.

A query collaborator answers "which villages?" either for an administrative filter or
for the visible map bounds. The HTTP implementation talks to the village API; the
in-memory one serves preloaded records (tests, local demos).
"""
