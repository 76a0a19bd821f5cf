"""Revenue Model Optimizer: Shopify analytics backend."""

__version__ = "1.0.0"
