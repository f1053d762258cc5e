"""Rule-grounded evaluation and quiz generation for volleyball referee training."""

__version__ = "0.1.0"
