from os import path

from setuptools import setup

this_dir = path.abspath(path.dirname(__file__))
with open(path.join(this_dir, "README.md")) as f:
    long_description = f.read()

setup(
    name="UoWContext",
    description="UoWContext - Repository, UnitOfWork and Pagination for SQLAlchemy",
    long_description=long_description,
    long_description_content_type="text/markdown",
    version="0.3",
    license="MIT",
    packages=["uowcontext", "uowcontext.test", "uowcontext.core"],
    package_data={
        "uowcontext": ["py.typed"],
        "uowcontext.core": ["py.typed"],
        "uowcontext.test": ["py.typed"],
    },
    keywords=["uowcontext", "unit of work", "repository", "sqlalchemy", "fastapi"],
    python_requires=">=3.9",
    install_requires=[
        "sqlalchemy>=2.0",
        "fastapi",
        "pydantic>=2",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
    ],
)
