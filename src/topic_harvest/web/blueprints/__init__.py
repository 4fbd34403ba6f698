"""API blueprints for topic harvest."""

from topic_harvest.web.blueprints.harvest import HarvestBlueprint

__all__ = ["HarvestBlueprint"]
