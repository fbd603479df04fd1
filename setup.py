from setuptools import find_packages, setup

setup(
    name="autorun",
    version="0.1.0",
    description="Manage systemd and launchd services through one interface",
    packages=find_packages(include=["autorun", "autorun.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0",  # Config and output schemas
        "typer<0.26",  # CLI (0.26+ vendors click, breaking click.get_current_context lookups)
        "click",  # Context lookup for the display format (ships with typer)
        "rich",  # Terminal formatting
        "jinja2",  # Unit file and plist templates
        "markupsafe",  # XML escaping in plists (ships with jinja2)
        "PyYAML",  # YAML output
    ],
    extras_require={
        "test": [
            "pytest>=7.0",  # Testing framework
            "pytest-timeout>=2.1",  # Test timeouts
        ],
    },
    entry_points={
        "console_scripts": [
            "autorun=autorun.cli:main",
        ],
    },
)
