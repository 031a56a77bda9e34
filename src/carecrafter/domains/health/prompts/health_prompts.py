"""MCP Prompts: pre-built interaction templates for daily tracking journeys."""

from __future__ import annotations

from fastmcp import FastMCP


def register_health_prompts(mcp: FastMCP) -> None:
    """Register health domain MCP prompts."""

    @mcp.prompt()
    def daily_checkin_prompt() -> str:
        """Prompt template for logging today's health metrics."""
        return """Let's log my health for today. Please ask me, one at a time, about:

1. How many hours I slept
2. Any exercise (minutes and type: cardio, strength, yoga, sports)
3. My step count
4. Glasses of water
5. Which meals I ate (breakfast, lunch, dinner)
6. Which of my prescribed medications I took
7. My mood, and anything else worth noting

Then save the day with log_daily_health and tell me my score and the
weakest component to work on tomorrow."""

    @mcp.prompt()
    def weekly_review_prompt(range_preset: str = "last_7_days") -> str:
        """Prompt template for reviewing tracked health over a period."""
        return f"""Let's review my tracked health for {range_preset.replace("_", " ")}. I'd like to:

1. See my average score, best day, streak and trend (health_analytics)
2. Understand which components met their targets and which fell short
3. Hear any patterns you noticed, such as weekend drops or low water days
4. Get two or three specific things to change this week

Please be encouraging but honest."""
