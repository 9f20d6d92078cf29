"""CRM contact search — database-side filtering, paging, and cached deal values."""
