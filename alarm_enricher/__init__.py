"""CloudWatch alarm enricher — attributes fired alarms to the resources violating them."""

__version__ = "0.1.0"
