import io

from setuptools import find_packages, setup

install_requires = open("deferred_analytics/requirements.txt").readlines()
posthog_requires = open("deferred_analytics/sinks/requirements.txt").readlines()
dev_requires = ["pytest>=7.0.0"]
all_requires = posthog_requires + dev_requires

setup(
    name="deferred-analytics",
    version="0.1.0",
    description="Buffers analytics page views and events until the current user has been identified",
    long_description=io.open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    keywords="analytics telemetry posthog deferred capture",
    license="Apache-2.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"deferred_analytics": ["requirements.txt", "sinks/requirements.txt"]},
    python_requires=">=3.10",
    install_requires=install_requires,
    extras_require={
        "posthog": posthog_requires,
        "dev": dev_requires,
        "all": all_requires,
    },
    include_package_data=True,
    classifiers=[
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    entry_points={
        "console_scripts": ["deferred-analytics=deferred_analytics.__main__:app"],
    },
)
