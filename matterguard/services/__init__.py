"""Policy evaluators, collaborator ports and audit sinks."""
