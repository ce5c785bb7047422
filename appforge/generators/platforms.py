"""
Platform generators.

There is one PlatformGenerator class; what differs between iOS, Android, web
and backend is data held in a PlatformProfile (system prompt, framework
instructions, file template). The registry hands out one configured instance
per platform id.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from appforge.core.errors import ExtractionError, GenerationError, ModelError
from appforge.core.extraction import extract_mapping
from appforge.generators.types import GeneratedFile, PlatformOutput
from appforge.generators.writer import write_files
from appforge.llm.client import ModelClient, ModelOptions

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformProfile:
    platform: str
    app_kind: str
    system_prompt: str
    coding_rules: str
    file_template: Dict[str, str]
    structure_template: Dict[str, Any]
    extra_sections: str = ""
    temperature: float = 0.2
    max_tokens: int = 4000


def to_generated_files(files_map: Any) -> List[GeneratedFile]:
    """Convert a ``{"path": "content"}`` mapping from a model response into GeneratedFile objects."""
    if not isinstance(files_map, dict) or not files_map:
        raise ValueError("AI response has no 'files' mapping")
    files = []
    for path, content in files_map.items():
        if not isinstance(path, str) or not path.strip():
            raise ValueError(f"Invalid file path in AI response: {path!r}")
        if not isinstance(content, str):
            # Models sometimes inline JSON documents (package.json, tsconfig) as objects.
            content = json.dumps(content, indent=2)
        files.append(GeneratedFile(path=path.strip(), content=content))
    return files


def build_platform_prompt(profile: PlatformProfile, spec: Dict[str, Any]) -> str:
    template = {"files": profile.file_template, "structure": profile.structure_template}
    return (
        "# TASK\n"
        f"Generate code for a complete {profile.app_kind} based on the following specification.\n\n"
        "# TECHNICAL SPECIFICATION\n"
        f"{json.dumps(spec, indent=2)}\n\n"
        "# INSTRUCTIONS\n"
        "1. Provide your entire response in accordance with the following JSON template.\n"
        "2. Write nothing BUT JSON.\n"
        '3. Provide a COMPLETE and WORKING code content for each file in the "files" object.\n'
        f"4. {profile.coding_rules}\n"
        "5. Add proper imports, error handling, and state management.\n\n"
        "# JSON TEMPLATE\n"
        f"```json\n{json.dumps(template, indent=2)}\n```\n"
        f"{profile.extra_sections}"
        "\nYour response must be in JSON format ONLY. Please follow this rule.\n"
    )


@dataclass
class PlatformGenerator:
    profile: PlatformProfile
    model: ModelClient

    @property
    def platform(self) -> str:
        return self.profile.platform

    async def generate(self, spec: Dict[str, Any], out_dir: Path) -> PlatformOutput:
        """Ask the model for this platform's files and write them under ``out_dir``."""
        prompt = build_platform_prompt(self.profile, spec)
        options = ModelOptions(
            system_prompt=self.profile.system_prompt,
            temperature=self.profile.temperature,
            max_tokens=self.profile.max_tokens,
        )
        try:
            raw = await self.model.invoke(prompt, options)
            code_structure = extract_mapping(raw, required_keys=("files",))
            files = to_generated_files(code_structure["files"])
        except (ModelError, ExtractionError, ValueError) as e:
            raise GenerationError(self.platform, f"{self.platform} generation failed: {e}") from e

        try:
            written = await asyncio.to_thread(write_files, files, out_dir)
        except (OSError, ValueError) as e:
            raise GenerationError(self.platform, f"{self.platform} file write failed: {e}") from e

        structure = code_structure.get("structure")
        log.info("Generated %d %s files", len(written), self.platform)
        return PlatformOutput(files=written, summary=structure if isinstance(structure, dict) else {})


IOS = PlatformProfile(
    platform="ios",
    app_kind="iOS SwiftUI app",
    system_prompt="You are an expert iOS developer specializing in SwiftUI. "
                  "Generate clean, modern, production-ready iOS code.",
    coding_rules="Write code using modern SwiftUI and Combine.",
    file_template={
        "App.swift": "// Full SwiftUI App struct content",
        "ContentView.swift": "// Main view content",
        "Models/User.swift": "// Model struct content",
        "Services/NetworkManager.swift": "// API service class content",
        "Views/LoginView.swift": "// Login view content",
        "Views/ProfileView.swift": "// Profile view content",
    },
    structure_template={
        "architecture": "MVVM",
        "frameworks": ["SwiftUI", "Combine", "Foundation"],
        "features_implemented": ["Login", "Profile View"],
    },
    extra_sections=(
        "\n# SAMPLE FILE CONTENTS (App.swift)\n"
        "```swift\nimport SwiftUI\n\n@main\nstruct MyApp: App {\n"
        "    var body: some Scene {\n        WindowGroup {\n            ContentView()\n"
        "        }\n    }\n}\n```\n"
    ),
)

ANDROID = PlatformProfile(
    platform="android",
    app_kind="Android Kotlin app with Jetpack Compose",
    system_prompt="You are an expert Android developer specializing in Kotlin and Jetpack Compose. "
                  "Generate clean, modern Android code.",
    coding_rules="Write code using modern Kotlin and Jetpack Compose.",
    file_template={
        "MainActivity.kt": "// Main activity content",
        "ui/theme/Theme.kt": "// Theme configuration",
        "data/models/User.kt": "// Model data class content",
        "data/network/ApiService.kt": "// API service interface content",
        "ui/screens/LoginScreen.kt": "// Login screen composable",
        "ui/screens/ProfileScreen.kt": "// Profile screen composable",
    },
    structure_template={
        "architecture": "MVVM",
        "frameworks": ["Jetpack Compose", "Retrofit", "Hilt"],
        "features_implemented": ["Login", "Profile View"],
    },
)

WEB = PlatformProfile(
    platform="web",
    app_kind="Next.js web application",
    system_prompt="You are an expert full-stack web developer specializing in Next.js, "
                  "TypeScript, and modern web technologies.",
    coding_rules="Write code using modern Next.js 14, TypeScript, and Tailwind CSS.",
    file_template={
        "app/page.tsx": "// Main page component",
        "app/layout.tsx": "// Root layout component",
        "components/ui/Button.tsx": "// Button component",
        "lib/api.ts": "// API utility functions",
        "app/login/page.tsx": "// Login page component",
        "app/profile/page.tsx": "// Profile page component",
    },
    structure_template={
        "architecture": "App Router",
        "frameworks": ["Next.js 14", "TypeScript", "Tailwind CSS"],
        "features_implemented": ["Login", "Profile View"],
    },
)

BACKEND = PlatformProfile(
    platform="backend",
    app_kind="Node.js Express backend API",
    system_prompt="You are an expert backend developer specializing in Node.js, Express, and database design.",
    coding_rules="Write code using modern Node.js, Express, and MongoDB, with input validation.",
    file_template={
        "server.js": "// Express server setup",
        "models/User.js": "// Mongoose user model",
        "routes/auth.js": "// Authentication routes",
        "routes/api.js": "// API routes",
        "middleware/auth.js": "// Authentication middleware",
        "config/database.js": "// Database configuration",
    },
    structure_template={
        "architecture": "MVC",
        "frameworks": ["Express.js", "MongoDB", "Mongoose", "JWT"],
        "features_implemented": ["Authentication", "API Endpoints"],
    },
)

DEFAULT_PROFILES: List[PlatformProfile] = [IOS, ANDROID, WEB, BACKEND]
