from setuptools import setup

setup(
    name="stochasticot",
    version='0.1.0',
    description="Estimation of (entropic) Wasserstein distances between "
                "discrete and sampleable measures with stochastic dual ascent",
    packages=['stochasticot', 'stochasticot.tests'],
    install_requires=[
              'numpy',
              'torch'
          ],
    extras_require={
        'test': ['pytest', 'POT'],
    },
    python_requires='>=3.7',
    license="MIT",
)
