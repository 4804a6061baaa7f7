"""Domain layer: entities, contracts and the feed document parser."""
