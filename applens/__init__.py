"""AppLens data API: schema inference and chart aggregation over tabular sources."""

__version__ = "1.0.0"
