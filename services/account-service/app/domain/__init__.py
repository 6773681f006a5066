"""Account domain: entities, validation rules and workflows."""
