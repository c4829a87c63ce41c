"""Classification core: pattern catalog, extractors, classifier, relay."""
