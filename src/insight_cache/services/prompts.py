"""Prompt construction for metric analysis.

Only the assembly of system and user prompts lives here; the completion
call is made elsewhere.
"""

import json
from typing import Any

SYSTEM_TEMPLATE = """You are an expert marketing analytics consultant analysing digital marketing performance for {brand}.

Your analysis should be:
- Data-driven and specific
- Actionable with clear next steps
- Aligned with business goals
- Prioritized by impact

Always respond in JSON format with this structure:
{{
  "insights": "detailed analysis of the metrics with specific numbers and trends",
  "recommendations": ["specific action 1", "specific action 2", "specific action 3"],
  "priority": "high|medium|low",
  "category": "trend|anomaly|opportunity|performance|attribution"
}}"""

CONTEXT_HEADER = "=== BUSINESS CONTEXT ==="
CONTEXT_FOOTER = (
    "=== IMPORTANT ===\n"
    "All insights and recommendations MUST align with the business context above. "
    "Reference specific goals, KPIs, and brand guidelines when relevant."
)

ANALYSIS_FOOTER = """Provide:
1. Key insights about performance trends (be specific with numbers and percentages)
2. Any anomalies, concerning patterns, or opportunities
3. 3-5 specific, actionable recommendations prioritized by impact
4. Priority level (high/medium/low) based on business impact and urgency"""


def build_system_prompt(business_context: list[str] | None = None, brand_name: str | None = None) -> str:
    prompt = SYSTEM_TEMPLATE.format(brand=brand_name or "your business")
    if business_context:
        prompt += f"\n\n{CONTEXT_HEADER}\n" + "\n\n".join(business_context)
        prompt += f"\n\n{CONTEXT_FOOTER}"
    return prompt


def build_metric_analysis_prompt(
    metrics: dict[str, Any],
    platform: str | None = None,
    date_range: dict[str, Any] | None = None,
) -> str:
    platform_text = f" from {platform}" if platform else " across all platforms"
    date_text = f" for {date_range['start']} to {date_range['end']}" if date_range else ""

    lines = [f"Analyze these marketing metrics{platform_text}{date_text}:", ""]
    for key, value in metrics.items():
        if isinstance(value, list):
            lines.append(f"{key}:\n{json.dumps(value, indent=2, default=str)}\n")
        elif isinstance(value, dict):
            lines.append(f"{key}:")
            lines.extend(f"  - {sub_key}: {sub_value}" for sub_key, sub_value in value.items())
            lines.append("")
        else:
            lines.append(f"{key}: {value}")

    return "\n".join(lines) + "\n" + ANALYSIS_FOOTER
