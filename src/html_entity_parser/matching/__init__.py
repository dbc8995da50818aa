"""Path matching: predicate steps, paths, group scopes and the traversal that emits match events."""
