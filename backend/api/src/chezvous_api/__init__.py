"""FastAPI application for payment initiation and Paystack webhooks."""
