"""
Services layer for the Bakery Cost Engine.

Modules are imported directly (e.g. ``from bakery.services import recipe_service``)
so that the costing core can depend on ``bakery.services.exceptions`` without
pulling in the database layer.
"""
