"""Infrastructure layer module.

Contains configuration, logging setup, database access and adapters
for the application ports.
"""
