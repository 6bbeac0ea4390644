from setuptools import setup, find_packages

setup(
    name="remotedesk",
    version="0.1.0",
    description="Screen sharing with remote mouse and keyboard control over TCP",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "pynput",
        "mss",
        "numpy",
        "opencv-python",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        'console_scripts': [
            'remotedesk-host=source_host.host_runner:main',
            'remotedesk-viewer=viewer.viewer_runner:main',
        ],
    },
)
