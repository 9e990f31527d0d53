"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build prompts from the user's preference summary and a candidate menu window.
- Ask the Groq LLM to propose menu ids with a short rationale each.
- Graceful fallback when the LLM is unavailable or returns invalid output.
"""
