"""
DocChat - document upload, summarization and grounded Q&A.

Sub-packages:
- documents: extraction, chunking and storage
- llm: Gemini client with retries and API key rotation
- pipeline: iterative summarizer and retrieval QA
"""
