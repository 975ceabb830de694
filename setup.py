from setuptools import setup, find_packages

setup(
    name="netguardian",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "click",
        "psutil",
        "toml",
        'pywin32; sys_platform == "win32"',
        'WMI; sys_platform == "win32"',
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "netguardian=netguardian.cli:cli",
            "netguardian-agent=netguardian.watcher:main",
        ],
    },
    python_requires=">=3.9",
    author="NetGuardian Contributors",
    description="DNS and VPN policy enforcement agent for Windows",
    long_description="A background agent that detects DNS hijacks and VPN state changes and restores the desired network posture.",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Win32 (MS Windows)",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Networking",
        "Topic :: System :: Systems Administration",
    ],
)
