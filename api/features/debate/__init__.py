"""Debate feature package: models, validators, store, service, controller and router.

Conversations are kept in a key-value store (Redis in production) as a topic
record and a history record per conversation id, both expiring together.
"""
