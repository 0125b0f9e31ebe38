from setuptools import setup, find_packages

with open("Readme.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="chef-client-service",
    version="1.0.0",
    author="chef-client-service Team",
    description='Installe et gère chef-client comme service système sur chaque plateforme.',
    long_description=long_description,
    long_description_content_type='text/markdown',
    include_package_data=True,
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "client_service": ["templates/*.j2", "templates/*/*.j2", "templates/*/*/*.j2"],
    },
    python_requires='>=3.8',
    install_requires=[
        "psutil>=5.9.0",
        "requests>=2.28.0",
        "Jinja2>=3.1.0",
        "schedule>=1.2.0",
        "pywin32>=306; platform_system=='Windows'",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
        "dev": [
            "black>=23.0.0",
            "flake8>=6.0.0",
        ],
    },

    entry_points='''
        [console_scripts]
        chef-client-service=client_service.main:main
    '''
)
