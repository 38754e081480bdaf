from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="glpi-notifier",
    version="0.1.0",
    description="Desktop notifications for new GLPI tickets",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Microsoft :: Windows",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Systems Administration",
    ],
    python_requires=">=3.7",
    install_requires=[
        "requests>=2.25.0",
        "python-dotenv>=0.15.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            # Notifier daemon
            "glpi-notifier=scripts.notifier.glpi_notifier_daemon:main",
        ],
    },
)
