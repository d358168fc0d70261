#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AI Subtitle Translator - Setup Configuration
"""

from setuptools import setup, find_namespace_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_path.exists():
    requirements = [
        line.strip()
        for line in requirements_path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="ai-subtitle-translator",
    version="0.3.0",
    description="JSON-RPC server and CLI for batch translation of SRT subtitles with Gemini",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="AI Subtitle Translator Team",
    python_requires=">=3.9",
    # core/ and api/ have no __init__.py
    packages=find_namespace_packages(include=["config*", "core*", "api*", "ai_providers*"]),
    py_modules=["quick_translate"],
    install_requires=requirements,
    extras_require={
        # Development dependencies
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "translator=quick_translate:main",
            "subtitle-translator-server=api.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Multimedia :: Video",
        "Topic :: Text Processing :: Linguistic",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="subtitles srt translation gemini ffmpeg json-rpc",
)
