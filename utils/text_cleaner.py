from typing import List


class TextCleaner:
    @staticmethod
    def strip_code_fences(content: str) -> str:
        """Remove a markdown code block wrapped around an LLM response"""
        content = content.strip()
        if content.startswith("```"):
            lines = content.split("\n")
            content = "\n".join(lines[1:-1]) if len(lines) > 2 else content
            content = content.replace("```json", "").replace("```", "").strip()
        return content

    @staticmethod
    def non_empty_lines(text: str, limit: int = None) -> List[str]:
        """Split text into stripped, non-empty lines"""
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        if limit is not None:
            lines = lines[:limit]
        return lines
