#!/usr/bin/env python3
"""
Build script for the member services Lambda functions.

Each function zip holds its entry-point directory next to the shared
member_services package, so the Lambda handler setting is
``<function>/lambda_function.lambda_handler``.
"""
import os
import shutil
import subprocess
import sys
import zipfile
from pathlib import Path

PACKAGE_NAME = "member_services"


def function_dirs(src_dir: Path) -> list[Path]:
    """Directories under src/ that hold a lambda_function.py entry point."""
    return sorted(d for d in src_dir.iterdir() if d.is_dir() and (d / "lambda_function.py").exists())


def main():
    """Main build function"""
    project_root = Path(__file__).parent.parent
    src_dir = project_root / "src"
    build_dir = project_root / "build"
    package_dir = src_dir / PACKAGE_NAME

    build_dir.mkdir(exist_ok=True)

    functions = function_dirs(src_dir)
    print(f"Building Lambda functions: {[f.name for f in functions]}")

    # Third-party dependencies are installed once and shared by every zip
    deps_dir = build_dir / "dependencies"
    if deps_dir.exists():
        shutil.rmtree(deps_dir)
    deps_dir.mkdir()
    print("Installing dependencies...")
    subprocess.run([
        sys.executable, "-m", "pip", "install",
        str(project_root),
        "-t", str(deps_dir),
        "--no-compile",
    ], check=True)
    # the project itself is copied from src/ below
    for installed in deps_dir.glob(f"{PACKAGE_NAME}*"):
        if installed.is_dir():
            shutil.rmtree(installed)
        else:
            installed.unlink()

    for function_dir in functions:
        function_name = function_dir.name
        zip_path = build_dir / f"{function_name}.zip"

        print(f"Building {function_name}...")

        temp_dir = build_dir / f"temp_{function_name}"
        if temp_dir.exists():
            shutil.rmtree(temp_dir)
        temp_dir.mkdir()

        shutil.copytree(deps_dir, temp_dir, dirs_exist_ok=True)
        shutil.copytree(function_dir, temp_dir / function_name)
        shutil.copytree(
            package_dir,
            temp_dir / PACKAGE_NAME,
            ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
        )

        print(f"Creating {function_name}.zip...")
        with zipfile.ZipFile(zip_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            for root, _, files in os.walk(temp_dir):
                for file in files:
                    file_path = Path(root) / file
                    arcname = file_path.relative_to(temp_dir)
                    zipf.write(file_path, arcname)

        shutil.rmtree(temp_dir)

        print(f"{function_name}.zip created ({zip_path.stat().st_size} bytes)")

    shutil.rmtree(deps_dir)
    print("Build complete!")


if __name__ == "__main__":
    main()
