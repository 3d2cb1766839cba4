"""Domain layer for charterdesk.

Services live in their own modules (e.g. ``charterdesk.domain.booking``) and
are not re-exported here: the database layer imports
``charterdesk.domain.entities`` and must not load the services with it.
"""
