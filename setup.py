from setuptools import setup, find_packages

setup(
    name='varexport',
    version='0.1.0',
    py_modules=['exporter', 'cli'],
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.10',
    install_requires=[
        'pydantic>=2',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'varexport = cli:main',
        ],
    },
)
