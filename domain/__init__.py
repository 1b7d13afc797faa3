"""Pure domain model: stock batches, FEFO allocation, sale settlement and stock analytics."""
