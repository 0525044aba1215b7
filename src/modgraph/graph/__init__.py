"""Visual graph transforms, traversal and node-state reconciliation."""
