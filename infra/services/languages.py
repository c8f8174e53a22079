"""Static language -> runtime table for the execution service."""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class LanguageRuntime:
    name: str
    runtime: str  # language key understood by the execution service
    version: str
    file_name: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "runtime": self.runtime, "version": self.version, "file": self.file_name}


SUPPORTED_LANGUAGES: Dict[str, LanguageRuntime] = {
    "python": LanguageRuntime("Python", "python", "3.10.0", "main.py"),
    "java": LanguageRuntime("Java", "java", "15.0.2", "Main.java"),
    "cpp": LanguageRuntime("C++", "c++", "10.2.0", "main.cpp"),
    "javascript": LanguageRuntime("JavaScript", "javascript", "16.3.0", "index.js"),
    "go": LanguageRuntime("Go", "go", "1.16.2", "main.go"),
    "csharp": LanguageRuntime("C#", "csharp", "6.12.0", "Program.cs"),
    "rust": LanguageRuntime("Rust", "rust", "1.68.2", "main.rs"),
}


def get_language(key: Optional[str]) -> Optional[LanguageRuntime]:
    return SUPPORTED_LANGUAGES.get((key or "").strip().lower())
