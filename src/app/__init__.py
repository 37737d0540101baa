"""Study-abroad marketplace API: application tasks and lead CRM."""
