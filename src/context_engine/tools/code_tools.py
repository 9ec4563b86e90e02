"""
Code tools: model-backed code review and static dependency detection.
"""

import re
from typing import Any, Dict, List, Optional

from .base import BaseTool
from .types import Tool, ToolContext, ParameterSpec, ParamType, ToolCategory


CODE_ANALYSIS_PROMPT = """Analyze this code for performance issues and best practices.
Focus on: {focus}
Language: {language}

Code:
{code}

Provide a concise review with concrete suggestions."""


class CodeAnalyzerTool(BaseTool):
    """Asks the analysis model for a quality and performance review."""

    def get_schema(self) -> Tool:
        return Tool(
            name="code_analyzer",
            description="Analyze code for quality and performance",
            category=ToolCategory.CODE.value,
            input_schema=[
                ParameterSpec("code", ParamType.STRING, True, "Source code to review"),
                ParameterSpec("language", ParamType.STRING, False, "Programming language, if known"),
                ParameterSpec("focus", ParamType.STRING, False, "Aspect to focus on, e.g. 'performance'"),
            ],
        )

    def run(self, parameters: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
        code = self._require_string(parameters, "code")
        language = parameters.get("language") or "auto-detect"
        focus = parameters.get("focus") or "quality and performance"

        prompt = CODE_ANALYSIS_PROMPT.format(focus=focus, language=language, code=code)
        analysis = self._generate(context, prompt, model=context.analysis_model)

        return {"language": language, "analysis": analysis}


# Import statements per language; each pattern captures the module name
DEPENDENCY_PATTERNS: Dict[str, List[re.Pattern]] = {
    "python": [
        re.compile(r"^\s*import\s+([\w.]+(?:\s+as\s+\w+)?(?:\s*,\s*[\w.]+(?:\s+as\s+\w+)?)*)\s*(?:#.*)?$", re.MULTILINE),
        re.compile(r"^\s*from\s+([\w.]+)\s+import\s", re.MULTILINE),
    ],
    "javascript": [
        re.compile(r"""require\(\s*['"]([^'"]+)['"]\s*\)"""),
        re.compile(r"""^\s*import\s+(?:[\w*{}\s,]+\s+from\s+)?['"]([^'"]+)['"]""", re.MULTILINE),
    ],
    "java": [
        re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+)(?:\.\*)?\s*;", re.MULTILINE),
    ],
    "c": [
        re.compile(r"""^\s*#\s*include\s*[<"]([^>"]+)[>"]""", re.MULTILINE),
    ],
    "go": [
        re.compile(r"""^\s*import\s+(?:\w+\s+)?"([^"]+)\"""", re.MULTILINE),
        re.compile(r"""^\s+(?:\w+\s+)?"([^"]+)"\s*$""", re.MULTILINE),
    ],
}

LANGUAGE_ALIASES = {
    "py": "python",
    "js": "javascript",
    "ts": "javascript",
    "typescript": "javascript",
    "node": "javascript",
    "cpp": "c",
    "c++": "c",
    "h": "c",
    "kotlin": "java",
    "golang": "go",
}


def detect_dependencies(code: str, language: Optional[str] = None) -> Dict[str, Any]:
    """Collect imported modules from ``code``.

    When no language is given every known language is tried and the one with
    the most matches wins.
    """
    if language:
        key = LANGUAGE_ALIASES.get(language.lower(), language.lower())
        languages = [key] if key in DEPENDENCY_PATTERNS else []
    else:
        languages = list(DEPENDENCY_PATTERNS.keys())

    best_language, best_dependencies = (languages[0] if len(languages) == 1 else None), []
    for lang in languages:
        found: List[str] = []
        for pattern in DEPENDENCY_PATTERNS[lang]:
            for match in pattern.findall(code):
                for name in match.split(","):
                    name = name.split(" as ")[0].strip()
                    if name and name not in found:
                        found.append(name)
        if len(found) > len(best_dependencies):
            best_language, best_dependencies = lang, found

    return {
        "language": best_language or language,
        "dependencies": sorted(best_dependencies),
        "count": len(best_dependencies),
    }


class DependencyDetectorTool(BaseTool):
    """Static import/require/include detection."""

    def get_schema(self) -> Tool:
        return Tool(
            name="dependency_detector",
            description="Detect code dependencies",
            category=ToolCategory.CODE.value,
            input_schema=[
                ParameterSpec("code", ParamType.STRING, True, "Source code to scan"),
                ParameterSpec("language", ParamType.STRING, False,
                              "python, javascript, java, c or go; detected when omitted"),
            ],
        )

    def run(self, parameters: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
        code = self._require_string(parameters, "code")
        return detect_dependencies(code, parameters.get("language"))
