"""Payment collaborator adapter: webhook schema and route."""
