from setuptools import setup, find_packages

setup(
    name='shiftctl',
    version='0.1.0',
    packages=find_packages(),
    include_package_data=True,
    package_data={
        'shiftctl.modules.provisioner': ['templates/*.j2'],
        'shiftctl.modules.network': ['templates/*.j2'],
    },
    install_requires=[
        'typer[all]',
        'requests',
        'python-dotenv',
        'paramiko',
        'pyyaml',
        'pydantic>=2',
        'jinja2',
        'cryptography',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'shiftctl=shiftctl.cli:app'
        ]
    },
    author='Your Name',
    description='Client tooling installer and remote bootstrap for single-node cluster VMs',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
