"""
Check that the service can start: dependencies, credentials and the reliability dataset
"""

import sys
from importlib import metadata
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# import name -> distribution name
REQUIRED = {
    "fastapi": "fastapi",
    "uvicorn": "uvicorn",
    "httpx": "httpx",
    "pydantic": "pydantic",
    "pydantic_settings": "pydantic-settings",
    "dotenv": "python-dotenv",
    "tldextract": "tldextract",
    "trafilatura": "trafilatura",
}


def check_packages():
    missing = []
    print("\nPackages:")
    for module, dist in REQUIRED.items():
        try:
            __import__(module)
        except ImportError:
            print(f"  [MISSING] {dist}")
            missing.append(dist)
            continue
        try:
            version = metadata.version(dist)
        except metadata.PackageNotFoundError:
            version = "unknown version"
        print(f"  [OK] {dist} {version}")
    return missing


def check_runtime():
    """Report credentials and dataset status; only missing credentials are fatal."""
    from data_loader import load_reliability_index
    from facttrace.config import get_settings

    settings = get_settings()
    problems = []
    print("\nConfiguration:")
    for label, value in (("SEARCH_API_KEY", settings.search_api_key), ("LLM_API_KEY", settings.llm_api_key)):
        if value:
            print(f"  [OK] {label} set")
        else:
            print(f"  [MISSING] {label}")
            problems.append(label)

    index = load_reliability_index(settings.reliability_dataset_path)
    if index.size():
        print(f"  [OK] reliability dataset: {index.size()} domains, {index.name_count()} names")
    else:
        print(f"  [WARN] no usable dataset at {settings.reliability_dataset_path}; every source will be admitted")
    return problems


def main():
    print("Checking FactTrace environment...")
    print("=" * 50)

    missing = check_packages()
    if missing:
        print("\nInstall with: pip install -e .")
        return False

    problems = check_runtime()
    print("\n" + "=" * 50)
    if problems:
        print(f"\nSet {', '.join(problems)} in .env before starting the service.")
        return False

    print("\nEnvironment ready.")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
