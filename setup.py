from setuptools import setup, find_packages

setup(
    name='adkfetch',
    version='0.1.0',
    description='Download the Windows ADK payloads without running the installer',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'pick',
        'PyYAML',
        'urllib3',
        'rich',
        'platformdirs',
        'packaging',
    ],
    extras_require={
        'test': [
            'pytest<9.1',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'adkfetch=adkfetch.cli:main',
        ],
    },
)
