# /kaani/utils/metrics.py

from prometheus_client import Counter, Histogram

# This file defines all Prometheus metrics used for engine monitoring.
# Centralizing them here makes them easy to find and manage.

# Conversation Metrics
turns_counter = Counter('kaani_turns_total', 'Conversation turns processed', ['audience', 'mode'])
slot_extractions_counter = Counter('kaani_slot_extractions_total', 'Slot values extracted from messages', ['slot_type', 'status'])
flow_load_counter = Counter('kaani_flow_loads_total', 'Flow definition loads', ['status'])

# Generation Metrics
ai_requests_counter = Counter('kaani_ai_requests_total', 'Total AI requests', ['model', 'status'])
generation_fallback_counter = Counter('kaani_generation_fallbacks_total', 'Turns answered with the fallback reply', ['reason'])

# Artifact Metrics
artifact_builds_counter = Counter('kaani_artifact_builds_total', 'Artifact bundles built', ['readiness'])
loan_suggestions_counter = Counter('kaani_loan_suggestions_total', 'Loan suggestions computed', ['deployment', 'confidence'])

# Persistence Metrics
database_operations_counter = Counter('kaani_database_operations_total', 'Database operations', ['operation', 'status'])

# Performance Metrics
response_time_histogram = Histogram('kaani_response_time_seconds', 'Response time in seconds', ['endpoint'])
