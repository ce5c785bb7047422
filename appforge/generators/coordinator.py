"""Fan a planning specification out to every requested platform generator."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

from appforge.core.errors import GenerationError
from appforge.generators.registry import PlatformRegistry
from appforge.generators.types import PlatformResult

log = logging.getLogger(__name__)

UNSUPPORTED_PLATFORM = "unsupported platform"


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items) or "- n/a"


def render_readme(spec: Mapping[str, Any], results: Mapping[str, PlatformResult]) -> str:
    """Project README aggregated over all platforms once generation has settled."""
    tech_stack = spec.get("tech_stack") or {}
    deployment = spec.get("deployment") or {}
    endpoints = spec.get("api_endpoints") or []

    sections = [
        f"# {spec.get('app_name', 'Generated App')}",
        str(spec.get("description", "")),
        "## Features",
        _bullets(str(f) for f in spec.get("features") or []),
        "## Tech Stack",
        _bullets(f"**{name.upper()}**: {tech}" for name, tech in tech_stack.items()),
        "## API Endpoints",
        _bullets(
            f"`{e.get('method', '')} {e.get('path', '')}` - {e.get('description', '')}"
            for e in endpoints if isinstance(e, dict)
        ),
        "## Platforms",
        _bullets(
            f"**{name}**: {len(r.files)} files" if r.success else f"**{name}**: failed ({r.error})"
            for name, r in results.items()
        ),
        "## Getting Started",
    ]
    if "backend" in results and results["backend"].success:
        sections.append("### Backend\n```bash\ncd backend\nnpm install\nnpm start\n```")
    if "web" in results and results["web"].success:
        sections.append("### Web\n```bash\ncd web\nnpm install\nnpm run dev\n```")
    if "ios" in results and results["ios"].success:
        sections.append("### iOS\n1. Open the `ios/` project in Xcode\n2. Build and run")
    if "android" in results and results["android"].success:
        sections.append("### Android\n1. Open `android/` in Android Studio\n2. Build and run")
    sections += [
        "## Deployment",
        _bullets(f"**{name.upper()}**: {service}" for name, service in deployment.items()),
    ]
    return "\n\n".join(sections) + "\n"


class GenerationCoordinator:
    def __init__(self, registry: PlatformRegistry):
        self.registry = registry

    async def _generate_one(self, spec: Dict[str, Any], platform: str, out_dir: Path, job_id: str) -> PlatformResult:
        generator = self.registry.get(platform)
        if generator is None:
            log.warning("Platform %s not supported", platform, extra={"job_id": job_id, "stage": "generating"})
            return PlatformResult(platform=platform, success=False, error=UNSUPPORTED_PLATFORM)

        try:
            output = await generator.generate(spec, out_dir / platform)
        except GenerationError as e:
            log.error("Platform %s failed: %s", platform, e, extra={"job_id": job_id, "stage": "generating"})
            return PlatformResult(platform=platform, success=False, error=str(e))
        except Exception as e:
            # Anything else is still confined to this platform.
            log.exception("Platform %s crashed", platform, extra={"job_id": job_id, "stage": "generating"})
            return PlatformResult(platform=platform, success=False, error=f"{platform} generation failed: {e}")

        log.info("Platform %s generated %d files", platform, len(output.files),
                 extra={"job_id": job_id, "stage": "generating"})
        return PlatformResult(platform=platform, success=True, files=output.files, summary=output.summary)

    async def generate_all(
        self,
        spec: Dict[str, Any],
        platforms: Iterable[str],
        out_dir: Path,
        job_id: str = "-",
    ) -> Dict[str, PlatformResult]:
        """
        Run every requested platform concurrently and wait for all of them.

        Returns one PlatformResult per distinct requested platform. Once all
        have settled, a README covering every platform is written to ``out_dir``.
        """
        requested = list(dict.fromkeys(platforms))
        log.info("Starting multi-platform code generation for %s", requested,
                 extra={"job_id": job_id, "stage": "generating"})

        await asyncio.to_thread(out_dir.mkdir, parents=True, exist_ok=True)
        settled = await asyncio.gather(
            *(self._generate_one(spec, platform, out_dir, job_id) for platform in requested)
        )
        results = dict(zip(requested, settled))

        readme = render_readme(spec, results)
        await asyncio.to_thread((out_dir / "README.md").write_text, readme, encoding="utf-8")
        return results
