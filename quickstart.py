#!/usr/bin/env python3
"""
Shadow2D Quick Start - Installation Verification
================================================

Run: python quickstart.py

This script verifies your Shadow2D installation by:
1. Checking all required Python packages are installed
2. Importing the Shadow2D modules
3. Loading the demo scene and running one light update
4. Printing next steps
"""

import sys
from pathlib import Path

# Project root setup
PROJECT_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(PROJECT_ROOT))


def print_header(title):
    """Print a formatted section header."""
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)


def print_check(name, passed, details=None):
    """Print a check result."""
    status = "[OK]" if passed else "[FAIL]"
    print(f"  {status} {name}")
    if details:
        print(f"       {details}")


def check_imports():
    """Check all required Python packages are installed."""
    print_header("Checking Python Dependencies")

    packages = [
        ("numpy", "numpy"),
        ("trimesh", "trimesh"),
        ("PyYAML", "yaml"),
        ("matplotlib", "matplotlib"),
        ("tqdm", "tqdm"),
    ]

    all_ok = True
    for name, import_name in packages:
        try:
            module = __import__(import_name)
            version = getattr(module, "__version__", "unknown")
            print_check(name, True, f"version {version}")
        except ImportError as e:
            print_check(name, False, str(e))
            all_ok = False

    return all_ok


def check_shadow2d_modules():
    """Check Shadow2D modules can be imported."""
    print_header("Checking Shadow2D Modules")

    modules = [
        ("Config Manager", "shadow2d.config.scene_config_manager", "SceneConfigManager"),
        ("Polygon Splitter", "shadow2d.computation.polygon_splitter", "PolygonSplitter"),
        ("Occluder Registry", "shadow2d.computation.occluder_registry", "OccluderRegistry"),
        ("Light Update Loop", "shadow2d.computation.shadow_engine", "LightUpdateLoop"),
        ("Scene Loader", "shadow2d.io.scene_loader", "SceneLoader"),
        ("Shadow Plotter", "shadow2d.visualization", "create_shadow_plot"),
    ]

    all_ok = True
    for name, module_path, attr_name in modules:
        try:
            module = __import__(module_path, fromlist=[attr_name])
            getattr(module, attr_name)
            print_check(name, True)
        except Exception as e:
            print_check(name, False, str(e))
            all_ok = False

    return all_ok


def load_demo_scene():
    """Load the demo scene and run a single update."""
    print_header("Loading Demo Scene")

    try:
        from shadow2d.config.scene_config_manager import SceneConfigManager
        from shadow2d.io.scene_loader import SceneLoader

        config_manager = SceneConfigManager(PROJECT_ROOT)
        config = config_manager.load_config("demo_scene.yaml")
        scene = SceneLoader.build_scene(config)
        scene.loop.update(0.0)

        print_check("Scene loaded", True)
        print(f"       Scene: {scene.name}")
        print(f"       Occluders: {len(scene.registry)} ({len(scene.diagnostics)} rejected)")
        for call in scene.loop.draw_calls():
            print(f"       Light '{call.light_id}': {len(call.geometries)} shadow mesh(es)")

        return True
    except Exception as e:
        print_check("Scene loading", False, str(e))
        return False


def print_summary(results):
    """Print final summary and next steps."""
    print_header("Summary")

    if all(results.values()):
        print("  All checks passed! Your Shadow2D installation is ready.")
    else:
        print("  Some checks failed. Please review the errors above.")
        print()
        print("  Try reinstalling:")
        print("    pip install -e .[test]")
        return

    print()
    print("-" * 60)
    print("  Next Steps:")
    print("-" * 60)
    print()
    print("  1. Run the example:")
    print("     python examples/01_simple_shadows.py")
    print()
    print("  2. Run the tests:")
    print("     pytest")
    print()


def main():
    """Run all verification checks."""
    print()
    print("=" * 60)
    print("  Shadow2D Quick Start - Installation Verification")
    print("=" * 60)

    results = {}
    results["imports"] = check_imports()
    results["shadow2d_modules"] = check_shadow2d_modules()
    results["demo_scene"] = load_demo_scene()

    print_summary(results)


if __name__ == "__main__":
    main()
