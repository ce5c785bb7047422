"""Prompt builders for the planning, analysis, recommendation and modernization stages."""
import json
from typing import Any, Dict, List, Optional

from appforge.workspace.uploads import CodeFile

PLANNING_SYSTEM_PROMPT = (
    "You are an expert software architect. Analyze app descriptions and create "
    "detailed technical specifications."
)
ANALYSIS_SYSTEM_PROMPT = "You are a code analysis expert. Describe codebases precisely and concisely."
RECOMMENDATION_SYSTEM_PROMPT = (
    "You are a senior engineer reviewing a codebase. Give concrete, prioritized recommendations."
)
MODERNIZATION_SYSTEM_PROMPT = "You are an expert at migrating code between frameworks without losing functionality."

PLANNING_TEMPLATE = {
    "app_name": "string",
    "description": "string",
    "platforms": ["ios", "android", "web", "backend"],
    "features": ["string"],
    "user_stories": ["string"],
    "database_schema": {"collection_name": {"fields": ["string"], "relationships": ["string"]}},
    "ui_components": {"shared": ["string"], "ios": ["string"], "android": ["string"], "web": ["string"]},
    "integrations": [{"name": "string", "service": "string", "purpose": "string"}],
    "api_endpoints": [{"method": "GET|POST|PUT|DELETE", "path": "string", "description": "string"}],
    "tech_stack": {"ios": "string", "android": "string", "web": "string", "backend": "string"},
    "deployment": {"ios": "string", "android": "string", "web": "string", "backend": "string"},
}

RECOMMENDATION_TEMPLATE = {
    "summary": "string",
    "recommendations": ["string"],
    "modernization_opportunities": ["string"],
    "estimated_effort": "string",
}

MODERNIZATION_TEMPLATE = {
    "files": {"path/to/new/file.ext": "// Full file content"},
    "migration_summary": {
        "changes_made": ["string"],
        "new_dependencies": ["string"],
        "removed_dependencies": ["string"],
        "breaking_changes": ["string"],
        "manual_steps": ["string"],
    },
}

JSON_ONLY = "Your response must be in JSON format ONLY. Please follow this rule."


def _json_block(value: Any) -> str:
    return f"```json\n{json.dumps(value, indent=2)}\n```"


def _source_listing(code_files: List[CodeFile]) -> str:
    return "\n\n".join(
        f"## FILE: {f.name}\n```{f.extension}\n{f.content}\n```" for f in code_files
    )


def build_planning_prompt(description: str) -> str:
    return "\n".join([
        "# TASK",
        "Analyze the following application description and create a comprehensive technical specification.",
        "",
        "# APPLICATION DESCRIPTION",
        f'"{description}"',
        "",
        "# INSTRUCTIONS",
        "1. ONLY provide a response that fully complies with the following JSON template.",
        "2. Do not include any descriptions, comments, or additional text outside of the JSON.",
        '3. Create an English, single-word, or hyphenated name for "app_name".',
        "4. Recommend modern, popular, and scalable stacks for technologies.",
        "5. List features and user stories in a realistic and actionable manner.",
        "",
        "# JSON TEMPLATE",
        _json_block(PLANNING_TEMPLATE),
        "",
        JSON_ONLY,
    ])


def build_analysis_prompt(code_files: List[CodeFile]) -> str:
    return "\n".join([
        "Analyze the following codebase and extract its structure, features, and technologies:",
        "",
        _source_listing(code_files),
        "",
        "Return a JSON object describing the codebase structure, identified features, "
        "technologies used, and suggestions for modernization.",
        JSON_ONLY,
    ])


def build_recommendation_prompt(
    analysis: Dict[str, Any],
    instruction: str,
    target_platform: Optional[str] = None,
    modernization_type: Optional[str] = None,
) -> str:
    focus = []
    if target_platform:
        focus.append(f"Target platform: {target_platform}")
    if modernization_type:
        focus.append(f"Modernization type: {modernization_type}")
    return "\n".join([
        "# TASK",
        "Produce recommendations for the codebase described by this analysis.",
        "",
        "# CODE ANALYSIS",
        _json_block(analysis),
        "",
        "# USER INSTRUCTION",
        instruction,
        *focus,
        "",
        "# JSON TEMPLATE",
        _json_block(RECOMMENDATION_TEMPLATE),
        "",
        JSON_ONLY,
    ])


def build_modernization_prompt(
    code_files: List[CodeFile],
    from_framework: str,
    to_framework: str,
    additional_instructions: Optional[str] = None,
) -> str:
    return "\n".join([
        "# TASK",
        f"Convert the following code from {from_framework} to {to_framework}.",
        "",
        "# SOURCE CODE",
        _source_listing(code_files),
        "",
        "# ADDITIONAL INSTRUCTIONS",
        additional_instructions or "Let there be no loss of functionality. Use modern best practices.",
        "",
        "# TRANSFORMATION RULES",
        "1. Respond only in the following JSON format.",
        '2. Each key in the "files" object should represent the target file path.',
        "3. Provide COMPLETE and EXECUTABLE code for each file.",
        "4. Update import/require statements to match the target framework.",
        "5. Carefully handle syntax and API differences.",
        "",
        "# OUTPUT FORMAT",
        _json_block(MODERNIZATION_TEMPLATE),
        "",
        JSON_ONLY,
    ])
