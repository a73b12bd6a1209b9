"""Setup configuration for latedays"""

from setuptools import setup, find_packages

setup(
    name="gitlab-latedays",
    version="0.1.0",
    description=(
        "CLI tool that computes late days used per student or group from the "
        "latest commit on their GitLab repository."
    ),
    author="GitLab Late Days Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
        "tzdata; platform_system == 'Windows'",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "gitlab-latedays=latedays.main:main",
        ],
    },
)
