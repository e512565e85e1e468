from setuptools import setup, find_packages

setup(
    name="printer-scanner",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "aiohttp>=3.9.0",
        "psutil>=5.9.3",
        "pysnmp>=7.1.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "printer-scanner=printer_scanner.scanner_service:main",
        ],
    },
    python_requires=">=3.11",
)
