from dataclasses import dataclass
from typing import Dict, List, Optional
from appforge.generators.platforms import DEFAULT_PROFILES, PlatformGenerator
from appforge.llm.client import ModelClient

@dataclass
class PlatformRegistry:
    mapping: Dict[str, PlatformGenerator]

    def get(self, platform: str) -> Optional[PlatformGenerator]:
        return self.mapping.get(platform)

    def supported(self) -> List[str]:
        return list(self.mapping)

    @staticmethod
    def default(model: ModelClient) -> "PlatformRegistry":
        return PlatformRegistry(mapping={
            profile.platform: PlatformGenerator(profile=profile, model=model)
            for profile in DEFAULT_PROFILES
        })
