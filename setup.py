from setuptools import find_packages, setup

setup(
    name="narration-studio",
    version="0.1.0",
    packages=find_packages(include=["narration_studio", "narration_studio.*"]),
    py_modules=["bootloader"],
    python_requires=">=3.11",
    install_requires=[
        "aiohttp>=3.9",
        "fastapi>=0.110",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "uvicorn>=0.27",
    ],
    extras_require={
        "test": [
            "httpx>=0.27",
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    include_package_data=True,
    description="Narration text and slide audio consistency engine for narrated slide decks",
)
