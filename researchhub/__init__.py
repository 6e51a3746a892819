"""
ResearchHub
Matches students with faculty research projects.

Architecture:
- PostgreSQL: Structured data (users, profiles, projects, applications, preferences)
- MongoDB: Generated roadmaps and their cache
- OpenAI-compatible AI: Roadmap drafting only
- Recommendations: deterministic fuzzy-matching scorer, no AI involved
"""

__version__ = "1.0.0"
