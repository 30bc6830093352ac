"""Project lists, configuration, blob naming, batch messages and shard transfers for scheduled repository security scoring."""

__version__ = "0.1.0"