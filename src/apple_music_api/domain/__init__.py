"""Domain layer: credentials, value objects, response models and errors."""
