from setuptools import find_namespace_packages, setup

# Installation en mode développement :
#   pip install -e .[test]

setup(
    name='stockboard',
    version='1.0.0',
    description="Tableau de bord de stock avec synchronisation hors ligne",
    packages=find_namespace_packages(include=['stockboard', 'stockboard.*']),
    python_requires='>=3.10',
    install_requires=[
        'fastapi>=0.110',
        'uvicorn>=0.27',
        'pydantic>=2.5',
        'supabase>=2.3',
        'httpx>=0.25',
        'postgrest>=0.13',
    ],
    extras_require={
        'test': ['pytest>=7.4'],
    },
    entry_points={
        'console_scripts': ['stockboard=stockboard.__main__:main'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Framework :: FastAPI',
    ],
)
