# jobchat - Job-Search Chat Proxy for a Bedrock Agent
# Version 0.1.0

"""
jobchat relays chat messages to an AWS Bedrock agent and turns its
free-form replies into structured job listings and dashboard filters.

Layers:
1. Agent Client - Lambda proxy, direct Bedrock runtime, or mock
2. Parsing - Payload normalization, job extraction strategies, filter recovery
3. Chat Service - One request/response cycle per chat turn
4. API - FastAPI endpoints for the embeddable widget
"""

__version__ = "0.1.0"
