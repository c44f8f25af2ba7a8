"""Pure record types and field validators for ingestion."""
