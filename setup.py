from setuptools import setup


setup(
    name="sheet-sanitizer",
    version="0.1.0",
    description="Remove empty and corrupted cells from Excel worksheets, compact rows, and report cell quality statistics",
    packages=["sheet_sanitizer"],
    python_requires=">=3.9",
    install_requires=[
        "openpyxl",
        "pandas",
        "streamlit",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "sheet-sanitizer=sheet_sanitizer.cli:main",
        ]
    },
)
