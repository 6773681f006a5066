"""Account service: registration, login and profile management over REST."""
