from pathlib import Path

from setuptools import find_namespace_packages, setup

# Load packages from requirements.txt
BASE_DIR = Path(__file__).parent
with open(Path(BASE_DIR, "requirements.txt")) as file:
    required_packages = [ln.strip() for ln in file.readlines() if ln.strip() and not ln.startswith("#")]

# Define our package
setup(
    name="LearnForge",
    version="0.1.0",
    description="Concept mastery engine: extract concepts from learning material and master them level by level",
    python_requires=">=3.10",
    packages=find_namespace_packages(include=["learnforge", "learnforge.*"]),
    install_requires=required_packages,
    extras_require={
        "dev": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["learnforge=learnforge.run:main"],
    },
)
