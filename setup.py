from setuptools import find_packages, setup

setup(
    name='sshroster',
    version='0.3.0',
    description='Terminal directory of SSH connection profiles with ssh/sshfs launching',
    packages=find_packages(include=['sshroster', 'sshroster.*']),
    python_requires='>=3.8',
    install_requires=[
        'textual>=0.48',
        'rich>=13.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'sshroster = sshroster.tui:main',
        ],
    },
)
