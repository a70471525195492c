import yaml
import os
from pathlib import Path
from typing import Dict, Any, List, Optional
from models.transform import PromptVariant
from models.tubuyaki import INTENT_TAGS
import logging

logger = logging.getLogger(__name__)

TRANSFORM_PROMPT = "tubuyaki_transform"


class PromptManager:
    """
    Manages prompt templates with hot-reload support

    Loads prompts from YAML files and builds the transform prompt
    for a given raw text and prompt variant.
    """

    def __init__(self, prompts_dir: Optional[str] = None):
        if prompts_dir is None:
            # Default to prompts/ directory in the same location as this file
            prompts_dir = Path(__file__).parent

        self.prompts_dir = Path(prompts_dir)
        self.cache: Dict[str, Dict[str, Any]] = {}
        logger.info(f"PromptManager initialized with directory: {self.prompts_dir}")

    def get_prompt_config(self, prompt_name: str) -> Dict[str, Any]:
        """
        Load prompt configuration from YAML file with hot-reload support

        Args:
            prompt_name: Name of the prompt file (without .yaml extension)

        Returns:
            Dictionary containing the prompt configuration
        """
        filepath = self.prompts_dir / f"{prompt_name}.yaml"

        if not filepath.exists():
            raise FileNotFoundError(f"Prompt file not found: {filepath}")

        # Get file modification time for hot-reload
        mtime = os.path.getmtime(filepath)

        cache_key = prompt_name

        # Check if we need to reload (file changed or not in cache)
        if cache_key not in self.cache or self.cache[cache_key].get('mtime') != mtime:
            logger.info(f"Loading/reloading prompt: {prompt_name}")
            with open(filepath, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)

            self.cache[cache_key] = {
                'data': config,
                'mtime': mtime
            }

        return self.cache[cache_key]['data']

    def build_transform_prompt(
        self,
        raw_text: str,
        variant: PromptVariant = PromptVariant.FLEXIBLE
    ) -> str:
        """
        Build the tubuyaki transform prompt using the YAML configuration

        Args:
            raw_text: Captured text to transform
            variant: Which summary/ideas rules to use

        Returns:
            Complete prompt string ready for the LLM
        """
        config = self.get_prompt_config(TRANSFORM_PROMPT)
        variant = PromptVariant(variant)

        sections = [config['system_role'].rstrip(), "", config['rules_header'], ""]
        sections.extend(self._build_rules(config, variant))
        sections.append("")
        sections.append(config['output_header'].rstrip())
        sections.append("")
        sections.append(config['output_example'].rstrip())
        sections.append("")
        sections.append(config['input_header'].rstrip())
        sections.append(raw_text)

        return "\n".join(sections)

    def _build_rules(self, config: Dict[str, Any], variant: PromptVariant) -> List[str]:
        """Numbered processing rules, variant rules overriding common ones"""
        rules = {**config.get('common_rules', {}), **config['variants'][variant.value]}

        lines = []
        for i, name in enumerate(config['rule_order'], 1):
            text = rules[name].replace('{intent_tags}', ", ".join(INTENT_TAGS))
            lines.append(f"{i}. **{name}**: {text}")
        return lines


# Singleton instance
prompt_manager = PromptManager()
