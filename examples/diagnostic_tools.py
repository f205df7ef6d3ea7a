# %%
import matplotlib.pyplot as plt
import numpy as np

from invchisq import Operand, inv_chi_square_cdf, set_log_level
from invchisq.diagnostics import CDFCurveDisplay, GradientCheckDisplay

set_log_level("DEBUG")

# %%
## Joint CDF of three variates sharing one degrees of freedom parameter
# Only nu is marked as variable, so only its gradient is computed
y = np.array([0.3, 0.8, 2.5])
result = inv_chi_square_cdf(y, Operand.variable(4.0))

print("P(Y <= y) jointly:", result.value)
print("dP/dnu:", result.grad("nu"))
print("dP/dy:", result.grad("y"))  # None, y is a constant

# %%
# The diagnostic displays compare the analytic gradients with
# central differences and plot the CDF

GradientCheckDisplay.from_function(inv_chi_square_cdf, y, 4.0, wrt="y")
GradientCheckDisplay.from_function(inv_chi_square_cdf, y, [1.0, 4.0, 9.0], wrt="nu")
CDFCurveDisplay.from_function(inv_chi_square_cdf, np.linspace(0.01, 5, 200), 4.0)

plt.show()
