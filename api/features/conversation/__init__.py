"""Conversation feature package: entities, models, DTOs, repository, and service.

Stores end-user conversations with the knowledge-base assistant, the
messages exchanged, the references cited by assistant replies, and user
feedback on those replies. Also serves listings and the 24h analytics.
"""
