# Supabase table names
EMAIL_QUEUE_TABLE = "email_queue"
SCHEDULED_EMAILS_TABLE = "scheduled_emails"
EMAIL_COUNTERS_TABLE = "email_counters"
PROCESSING_STATS_TABLE = "email_processing_stats"
FAILED_EMAILS_TABLE = "failed_emails"
EMAIL_TEMPLATES_TABLE = "email_templates"
