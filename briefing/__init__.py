"""
Interest briefing core package.

Modules
───────
models        — Pydantic data models (BriefingResult, Source, TrendingTopic, …)
errors        — Exception hierarchy shared by adapters and the orchestrator
registry      — Per-provider model list + selected model (ModelRegistry)
prompts       — Prompt templates for summaries, social posts and trending topics
parsing       — Output parser: structured → heuristic → fixed fallback
search        — Wikipedia search supplement for backends without grounding
providers     — Claude (web search), Groq and Ollama adapters
orchestrator  — BriefingService: provider resolution + concurrent fan-out
export        — Markdown export of a set of briefings
"""
