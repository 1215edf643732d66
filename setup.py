from setuptools import setup, find_packages

# Read the contents of your README file
with open('README.md', encoding='utf-8') as f:
    long_description = f.read()

# Read the contents of the requirements file
with open('requirements.txt') as f:
    requirements = f.read().splitlines()

setup(
    name='geomio',
    version='0.1',
    author='Francesco Fugazzi',
    description='Geometry file I/O with per-entity format registries',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=requirements,
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
    entry_points={
        'console_scripts': [
            'geomio=geomio.main:main',
        ],
    },
)
