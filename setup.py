from setuptools import setup


setup(
    name="report-reconciler",
    version="0.1.0",
    description="Parse work-report templates, merge daily status entries, and fill report workbooks",
    packages=["report_reconciler"],
    install_requires=[
        "pandas",
        "openpyxl",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "report-reconciler=report_reconciler.cli:main",
        ]
    },
)
