"""Walking, cataloging, persisting and searching file entries."""
