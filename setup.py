from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="knowledge-assistant-backend",
    version="0.1.0",
    author="Knowledge Assistant Team",
    author_email="team@knowledge-assistant.example.com",
    description="Chat knowledge assistant backend with document ingestion",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["alembic", "alembic.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.103.0",
        "uvicorn>=0.23.0",
        "pydantic>=2.3.0",
        "pydantic-settings>=2.0.0",
        "sqlalchemy[asyncio]>=2.0.0",
        "asyncpg>=0.28.0",
        "alembic>=1.11.0",
        "psycopg2-binary>=2.9.0",
        "celery>=5.3.0",
        "redis>=4.6.0",
        "tiktoken>=0.4.0",
        "python-multipart>=0.0.6",
        "pdfminer.six>=20221105",
        "python-docx>=1.0.0",
        "python-pptx>=0.6.21",
        "pandas>=2.0.0",
        "openpyxl>=3.1.0",
        "xlrd>=2.0.1",
        "httpx>=0.24.1",
        "python-jose[cryptography]>=3.3.0",
        "mem0ai>=0.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.3.1",
            "pytest-asyncio",
            "pytest-cov>=4.1.0",
            "aiosqlite>=0.19.0",
            "black>=23.7.0",
            "ruff>=0.0.280",
            "mypy>=1.5.1",
            "pre-commit>=3.3.3",
            "types-redis>=4.6.0.3",
        ],
    },
)
