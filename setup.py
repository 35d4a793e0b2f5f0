# setup.py
import os
import re
from setuptools import setup, find_packages

# Function to read the requirements.txt file
def parse_requirements(filename="requirements.txt"):
    with open(os.path.join(os.path.dirname(__file__), filename), 'r') as f:
        return [line.strip() for line in f if line.strip() and not line.startswith('#')]

# Read the contents of your README file for long description
try:
    with open(os.path.join(os.path.dirname(__file__), 'README.md'), encoding='utf-8') as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = "Unified diff parsing and AI-assisted review comments for pull requests."

# Get version from package __init__.py without importing it
def read_version():
    init_path = os.path.join(os.path.dirname(__file__), "src", "codefusion_reviewer", "__init__.py")
    try:
        with open(init_path, encoding='utf-8') as fp:
            match = re.search(r'^__version__\s*=\s*["\']([^"\']+)["\']', fp.read(), re.MULTILINE)
    except FileNotFoundError:
        match = None
    return match.group(1) if match else "0.1.0-dev" # Fallback version

setup(
    name='codefusion-reviewer',
    version=read_version(),
    description='Unified diff parsing and AI-assisted pull request review comments using LiteLLM.',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='Apache License 2.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src', exclude=['tests*', '*.tests', '*.tests.*']),
    package_data={'codefusion_reviewer': ['prompts/*.txt']},
    include_package_data=True,
    install_requires=parse_requirements(),
    extras_require={
        'test': ['pytest>=7.0'],
    },
    python_requires='>=3.9',
    entry_points={
        'console_scripts': [
            'codefusion-review = codefusion_reviewer.main:main_cli',
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Software Development :: Quality Assurance',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
    ],
    keywords='code review llm litellm ai pull request diff unidiff',
)
